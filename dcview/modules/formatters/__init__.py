from .formatters import (
    mode_to_string,
    format_mtime,
    human_readable_size,
    size_string,
    format_command,
)
