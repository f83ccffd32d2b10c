from pydantic import BaseModel
from typing import Dict

class SkillBand(BaseModel):
    band: float
    attempts: int
    average: float

class BandSummary(BaseModel):
    user_id: int
    reading: SkillBand
    listening: SkillBand
    writing: SkillBand
    speaking: SkillBand
    overall: float
    pending_attempts: int = 0
    failed_attempts: int = 0

    def as_dict(self) -> Dict[str, float]:
        return {
            "Reading": self.reading.band,
            "Listening": self.listening.band,
            "Writing": self.writing.band,
            "Speaking": self.speaking.band,
            "Overall": self.overall,
        }
