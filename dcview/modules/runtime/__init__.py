from .executor import CommandResult, CommandRunner, RuntimeExecutor, execute_captured
from .handles import ContainerHandle, HandleKind, build_operation_args, build_file_operation_args
