"""
Domain models — Pydantic types for the build pipeline.

All models are re-exported here for convenient access:

    from capbuild.core.models import Action, Receipt, BuildOptions
"""

from capbuild.core.models.action import Action, Receipt
from capbuild.core.models.options import (
    OPTIONS,
    BuildOptions,
    OptionSpec,
    build_options,
    get_option,
)

__all__ = [
    # action.py
    "Action",
    # options.py
    "BuildOptions",
    "OPTIONS",
    "OptionSpec",
    "Receipt",
    "build_options",
    "get_option",
]
