from .meta import ParamMeta

__all__ = ["ParamMeta"]
