"""
Placeholder Vocabulary
Data fields a template element can pull from a certificate record
"""

from typing import Dict, List, NamedTuple


class PlaceholderField(NamedTuple):
    key: str
    label: str


# Text placeholders, in picker order
PLACEHOLDERS: List[PlaceholderField] = [
    PlaceholderField("traineeName", "Trainee Full Name"),
    PlaceholderField("certificateTitle", "Certificate Title / Description"),
    PlaceholderField("trainingProgramName", "Training Program Name"),
    PlaceholderField("certificateNumber", "Certificate Number"),
    PlaceholderField("atcCode", "ATC Code"),
    PlaceholderField("dateOfIssue", "Date of Issue"),
    PlaceholderField("placeOfIssue", "Place of Issue"),
    PlaceholderField("chairpersonName", "Chairperson Name"),
    PlaceholderField("chairpersonTitle", "Chairperson Title"),
    PlaceholderField("legalDisclaimer", "Legal Disclaimer"),
    PlaceholderField("centerName", "Training Center Name"),
    PlaceholderField("certificateTypeLabel", "Certificate Type"),
]

# Image placeholders
IMAGE_PLACEHOLDERS: List[PlaceholderField] = [
    PlaceholderField("traineePhoto", "Trainee/Trainer Photo"),
    PlaceholderField("centerLogo", "Center Logo"),
]

CERTIFICATE_TYPE_LABELS: Dict[str, str] = {
    "trainee": "Trainee Certificate",
    "accredited-center": "Accredited Training Center Certificate",
    "trainer": "Certified Trainer Certificate",
}
