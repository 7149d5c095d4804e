from .api import app, get_file_access
