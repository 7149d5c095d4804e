"""
Pre-built static helper payloads.

Binaries are dropped here at build time as ``dcv-helper-<arch>``
(amd64, arm64, arm). See dcview.modules.keepers.helper_binaries.
"""
