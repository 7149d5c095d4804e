from .file_entry import FileEntry, format_entry_line
from .ls_parser import parse_ls_output, parse_ls_line
from .tar_parser import TarHeader, parse_tar_header, iter_tar_members
from .archive_index import ArchiveIndex, normalize_path
