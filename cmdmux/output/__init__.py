from .formats import dump_result, load_result, supported_formats

__all__ = ["dump_result", "load_result", "supported_formats"]
