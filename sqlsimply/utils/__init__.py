from sqlsimply.utils import logging, serializers

__all__ = ("logging", "serializers")
