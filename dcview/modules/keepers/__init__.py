from .helper_binaries import (
    HelperBinarySet,
    SUPPORTED_ARCHITECTURES,
    default_helper_set,
    normalize_arch,
)
from .provisioner import (
    ArchitectureCache,
    BrowseSession,
    HelperProvisioner,
    InjectionCache,
    build_injection_commands,
    host_architecture,
    parse_architecture,
    remove_staged_file,
    stage_to_temp_file,
)
