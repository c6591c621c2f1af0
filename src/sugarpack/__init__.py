"""SugarCRM module packager.

Builds installable module zip archives from a source tree, a manifest
and optional per-module templates.
"""

SOFTWARE_NAME = "SugarModulePackager"

__version__ = "0.3.0"
