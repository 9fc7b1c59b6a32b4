from .codec import apply, flatten, num_params, unflatten, unflatten_named

__all__ = ["apply", "flatten", "num_params", "unflatten", "unflatten_named"]
