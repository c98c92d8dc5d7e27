"""
DICOMweb data-source adapter. Holds endpoint configuration only; requests
are issued by whoever consumes the adapter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class DicomWebDataSource:
    name: str = "dicomweb"
    qido_root: str = ""
    wado_root: str = ""
    supports_fuzzy_matching: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(cls, configuration: Dict[str, Any]) -> "DicomWebDataSource":
        config = dict(configuration)
        return cls(
            name=config.pop("name", "dicomweb"),
            qido_root=config.pop("qidoRoot", ""),
            wado_root=config.pop("wadoRoot", ""),
            supports_fuzzy_matching=bool(config.pop("supportsFuzzyMatching", False)),
            extra=config,
        )

    def get_config(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "qidoRoot": self.qido_root,
            "wadoRoot": self.wado_root,
            "supportsFuzzyMatching": self.supports_fuzzy_matching,
            **self.extra,
        }

    def study_url(self, study_instance_uid: str) -> Optional[str]:
        if not self.wado_root:
            return None
        return f"{self.wado_root.rstrip('/')}/studies/{study_instance_uid}"
