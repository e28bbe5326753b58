from .router import DispatchResult, FunctionCallRouter, FunctionSpec, error_result

__all__ = ["FunctionCallRouter", "FunctionSpec", "DispatchResult", "error_result"]
