from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ProcessorResult:
    """Raw (not yet validated) output of one processor run."""
    data: Dict[str, Any]
    extraction_method: str
    llm_metadata: Dict[str, Any] = field(default_factory=dict)
    ocr_confidence: Optional[float] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def describe(self) -> Dict[str, Any]:
        info = {**self.llm_metadata, **self.details, "extractionMethod": self.extraction_method}
        if self.ocr_confidence is not None:
            info["ocrConfidence"] = round(self.ocr_confidence, 4)
        return info
