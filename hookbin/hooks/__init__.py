"""Hook registry: the namespace of registered webhook endpoints."""

from hookbin.hooks.models import Hook
from hookbin.hooks.registry import HOOKS_BUCKET, HookRegistry, validate_hook_name

__all__ = ["HOOKS_BUCKET", "Hook", "HookRegistry", "validate_hook_name"]
