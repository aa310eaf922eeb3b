"""Demo lab panel and canned collaborator responses.

``DEMO_LAB_TEXT`` is an OCR-style panel users can import to try the
tracker. ``demo_extraction_response`` is what the mock provider returns for
it, so the whole import pipeline runs without an API key.
"""

from __future__ import annotations

import json

DEMO_LAB_TEXT = """\
TESTOSTERONE, TOTAL, MS 427 ng/dL (Range: 250-1100)
TESTOSTERONE, FREE 102.0 pg/mL (Range: 35.0-155.0)
HOMOCYSTEINE 8.9 umol/L (Range: < 12.9)
VITAMIN D, 25-OH, TOTAL 20 ng/mL (Low) (Range: 30-100)
TSH 2.76 mIU/L (Range: 0.40-4.50)
LDL CHOLESTEROL 105 mg/dL (High) (Range: <100)
APOLIPOPROTEIN B 79 mg/dL (Optimal <90)
HBA1C 5.1 % (Range: <5.7)
CRP, HS 0.3 mg/L (Optimal <1.0)
FERRITIN 91 ng/mL (Range: 38-380)
Body Fat 18.5 % (Range: 10-20)
Lean Muscle Mass 165 lbs (Normal)
"""

_DEMO_METRICS = [
    ("Testosterone, Total", 427, "ng/dL", "Hormones", "250-1100", "Normal"),
    ("Testosterone, Free", 102.0, "pg/mL", "Hormones", "35.0-155.0", "Normal"),
    ("Homocysteine", 8.9, "umol/L", "Blood", "< 12.9", "Normal"),
    ("Vitamin D, 25-OH, Total", 20, "ng/mL", "Vitamins", "30-100", "Low"),
    ("TSH", 2.76, "mIU/L", "Hormones", "0.40-4.50", "Normal"),
    ("LDL Cholesterol", 105, "mg/dL", "Blood", "<100", "High"),
    ("Apolipoprotein B", 79, "mg/dL", "Blood", "<90", "Optimal"),
    ("HbA1c", 5.1, "%", "Blood", "<5.7", "Normal"),
    ("CRP, hs", 0.3, "mg/L", "Blood", "<1.0", "Optimal"),
    ("Ferritin", 91, "ng/mL", "Blood", "38-380", "Normal"),
    ("Body Fat", 18.5, "%", "Body", "10-20", "Normal"),
    ("Lean Muscle Mass", 165, "lbs", "Body", "", "Normal"),
]


def get_demo_records(collection_date: str = "2024-01-10") -> list[dict]:
    """The demo panel as extracted records."""
    return [
        {
            "name": name,
            "value": value,
            "unit": unit,
            "category": category,
            "date": collection_date,
            "referenceRange": reference_range,
            "status": status,
        }
        for name, value, unit, category, reference_range, status in _DEMO_METRICS
    ]


def demo_extraction_response(collection_date: str = "2024-01-10") -> str:
    """JSON body an extraction call would return for ``DEMO_LAB_TEXT``."""
    return json.dumps({"metrics": get_demo_records(collection_date)})
