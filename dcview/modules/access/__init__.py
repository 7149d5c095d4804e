from .file_access import FileAccess
from .targets import BrowseTarget, LiveTarget, SnapshotTarget
