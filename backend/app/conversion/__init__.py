from .service import ConversionOrchestrator
from .models import ConversionRequest, ConversionResult, TargetFormat

__all__ = ["ConversionOrchestrator", "ConversionRequest", "ConversionResult", "TargetFormat"]
