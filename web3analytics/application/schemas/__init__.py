from .tracking import LoadedResponse, QueuedResponse

__all__ = ["LoadedResponse", "QueuedResponse"]
