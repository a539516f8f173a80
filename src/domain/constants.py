"""
Domain Constants: 인터뷰 전역 상수.

클라이언트(SPA)가 보내는 enum 문자열과 1:1로 일치해야 함.
값을 바꾸면 프롬프트 분기와 저장된 report의 config가 어긋남 → 추가만 허용.
"""

from enum import Enum

# =============================================================================
# Interview Enums (클라이언트 값 그대로)
# =============================================================================


class ExperienceLevel(str, Enum):
    """지원자 경력 레벨."""
    JUNIOR = "Junior"
    MID = "Mid-level"
    SENIOR = "Senior"
    STAFF = "Staff / Principal"


class InterviewRound(str, Enum):
    """인터뷰 라운드."""
    SCREENING = "Recruiter Screening"
    TECHNICAL = "Technical Screen"
    BEHAVIORAL = "Behavioral"
    SYSTEM_DESIGN = "System Design"
    FINAL = "Final / On-site"


class InterviewMode(str, Enum):
    """세션 모드. 시스템 프롬프트 분기 기준."""
    FULL_INTERVIEW = "Full Interview"
    PRACTICE_DRILL = "Practice Drill"
    MCQ_QUIZ = "MCQ Quiz"
    CODING_CHALLENGE = "Coding Challenge"


class PracticeDrillType(str, Enum):
    """Practice drill 종류."""
    ELEVATOR_PITCH = "Elevator Pitch"
    STAR_METHOD = "STAR Method"
    TECHNICAL_DEFINITIONS = "Technical Pop Quiz"


class DsaDifficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class DsaTopic(str, Enum):
    ARRAYS = "Arrays"
    STRINGS = "Strings"
    LINKED_LIST = "Linked List"
    TREES = "Trees & Graphs"
    DYNAMIC_PROGRAMMING = "Dynamic Programming"
    BACKTRACKING = "Backtracking"
    GENERAL = "General Logic"


# =============================================================================
# Option Lists (설정 화면 선택지)
# =============================================================================

PROGRAMMING_LANGUAGES: list[str] = ["JavaScript", "Python", "Java", "C++", "C"]

COMPANY_SUGGESTIONS: list[str] = [
    "Google",
    "Amazon",
    "Meta",
    "Microsoft",
    "Apple",
    "Netflix",
]

# delivery 분석 대상 (프롬프트 + 로컬 fallback 카운트 공용)
FILLER_WORDS: tuple[str, ...] = (
    "um",
    "uh",
    "like",
    "you know",
    "so",
    "basically",
    "actually",
)

# =============================================================================
# Conversation Control Phrases
# =============================================================================
# 클라이언트가 이 문자열로 화면 전환을 판단함 → 프롬프트와 반드시 동일

END_INTERVIEW_SENTINEL = "END_INTERVIEW"
START_CODING_TRIGGER = "[START_CODING_CHALLENGE]"
INTERVIEW_SUMMARY_HEADING = "### Interview Summary"
STAR_ANALYSIS_HEADING = "### STAR Method Analysis"
DRILL_COMPLETE_PHRASE = "Drill complete."

# =============================================================================
# Database Tables (Supabase)
# =============================================================================

PROFILES_TABLE = "profiles"
REPORTS_TABLE = "reports"

# profiles 조회 시 선택 컬럼 (email은 auth 스키마가 SSOT)
PROFILE_COLUMNS = "full_name, target_role"

# =============================================================================
# LLM Defaults
# =============================================================================

DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"

MCQ_QUESTION_COUNT = 10
MCQ_OPTION_COUNT = 4
DSA_TEST_CASE_COUNT = 5
