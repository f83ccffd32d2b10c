from enum import Enum


# Unanswered sub-question in an answer group
UNANSWERED = "_"

MIN_BAND = 0.0
MAX_BAND = 9.0


class RoleEnum(str, Enum):
    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"


class ExamTypeEnum(str, Enum):
    READING = "Reading"
    LISTENING = "Listening"
    WRITING = "Writing"
    SPEAKING = "Speaking"

    @property
    def is_auto_graded(self) -> bool:
        return self in (ExamTypeEnum.READING, ExamTypeEnum.LISTENING)


class ExamAttemptStatusEnum(str, Enum):
    STARTED = "started"
    GRADED = "graded"
    PENDING_AI = "pending_ai"
    GRADING_FAILED = "grading_failed"


class ScoreStateEnum(str, Enum):
    SCORED = "scored"
    PENDING = "pending"
    FAILED = "failed"
    NOT_SUBMITTED = "not_submitted"


class GradingJobStatusEnum(str, Enum):
    QUEUED = "queued"
    COMPLETED = "completed"
    FAILED = "failed"


# Academic Listening/Reading raw score (out of 40) to band
LISTENING_READING_BAND_TABLE = (
    (39, 40, 9.0),
    (37, 38, 8.5),
    (35, 36, 8.0),
    (33, 34, 7.5),
    (30, 32, 7.0),
    (27, 29, 6.5),
    (23, 26, 6.0),
    (20, 22, 5.5),
    (16, 19, 5.0),
    (13, 15, 4.5),
    (10, 12, 4.0),
    (7, 9, 3.5),
    (5, 6, 3.0),
    (3, 4, 2.5),
    (0, 2, 2.0),
)

FULL_TEST_QUESTION_COUNT = 40
