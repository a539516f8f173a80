"""
프롬프트 구성.

역할:
- 인터뷰 설정 → 시스템 instruction
- 대화 이력 → ChatTurn 목록
- LLM 엔드포인트별 프롬프트 문자열

주의: 클라이언트는 START_CODING_TRIGGER, INTERVIEW_SUMMARY_HEADING 등
고정 문구로 화면 전환을 판단함 → 문구는 domain.constants에서만 가져올 것.
"""

import json
from collections.abc import Iterable

from src.app.providers.base import ChatTurn
from src.domain.constants import (
    DRILL_COMPLETE_PHRASE,
    DSA_TEST_CASE_COUNT,
    END_INTERVIEW_SENTINEL,
    FILLER_WORDS,
    INTERVIEW_SUMMARY_HEADING,
    MCQ_OPTION_COUNT,
    MCQ_QUESTION_COUNT,
    STAR_ANALYSIS_HEADING,
    START_CODING_TRIGGER,
    InterviewMode,
    InterviewRound,
    PracticeDrillType,
)
from src.domain.schemas import ChatMessage, DSAQuestion, InterviewConfig

BASE_INSTRUCTION = (
    "You are an AI Interviewer. Be professional, insightful, and encouraging. "
    "Keep your responses concise unless asked for detail."
)

JSON_ONLY = "Respond ONLY with a valid JSON object matching the schema."

# =============================================================================
# System Instruction
# =============================================================================


def get_system_instruction(config: InterviewConfig) -> str:
    """
    인터뷰 설정 → 시스템 instruction.

    - Full Interview: 레벨/라운드/회사 스타일/이력서 + 종료 시 요약 지시
    - Practice Drill: drill 종류별 단일 질문 + 피드백
    - 그 외 모드: 기본 instruction만
    """
    instruction = BASE_INSTRUCTION

    if config.mode == InterviewMode.FULL_INTERVIEW:
        instruction += _full_interview_instruction(config)
    elif config.mode == InterviewMode.PRACTICE_DRILL:
        instruction += _practice_drill_instruction(config)

    return instruction


def _full_interview_instruction(config: InterviewConfig) -> str:
    level = _value(config.level)
    round_name = _value(config.round)
    parts = [f" Conduct a {level} {round_name} interview for a {config.role} position."]

    if config.company_style:
        parts.append(f" Emulate the interview style of {config.company_style}.")

    if config.resume_content:
        parts.append(
            " The candidate has provided their resume. "
            "Ask questions based on this resume content."
        )

    if config.round == InterviewRound.TECHNICAL:
        parts.append(
            " This is a technical screen. After a brief introduction, you must "
            "transition to a coding challenge. Announce that you are moving to the "
            f'coding part of the interview, and then say EXACTLY and ONLY: "{START_CODING_TRIGGER}". '
            "Do not say anything else after that trigger phrase."
        )

    parts.append(
        f" If the user says '{END_INTERVIEW_SENTINEL}', you must provide a comprehensive "
        "summary of the entire interview. This summary should be formatted in markdown "
        "and cover their performance, strengths, and areas for improvement. "
        f"Start the summary with '{INTERVIEW_SUMMARY_HEADING}'."
    )

    if config.resume_content:
        parts.append(
            f'\n\nCandidate resume:\n"""\n{config.resume_content.strip()}\n"""'
        )

    return "".join(parts)


def _practice_drill_instruction(config: InterviewConfig) -> str:
    instruction = f" This is a practice drill for {_value(config.drill_type)}."

    if config.drill_type == PracticeDrillType.ELEVATOR_PITCH:
        instruction += (
            ' Ask the candidate to give their "elevator pitch" or "tell me about '
            'yourself". After their response, provide specific feedback on their '
            f'pitch and conclude by saying "{DRILL_COMPLETE_PHRASE}"'
        )
    elif config.drill_type == PracticeDrillType.STAR_METHOD:
        instruction += (
            ' Ask a behavioral question (e.g., "Tell me about a time you faced a '
            'conflict with a coworker."). After their response, analyze their answer '
            "using the STAR (Situation, Task, Action, Result) method. Provide feedback "
            f'on how well they structured their story. Conclude by saying "{DRILL_COMPLETE_PHRASE}" '
            f'and format the feedback with a title "{STAR_ANALYSIS_HEADING}".'
        )
    elif config.drill_type == PracticeDrillType.TECHNICAL_DEFINITIONS:
        instruction += (
            f" This is a technical pop quiz for a {config.role}. Ask for a definition "
            "of a single, core technical concept relevant to that role. After their "
            "response, provide the correct definition and feedback on their answer. "
            f'Conclude by saying "{DRILL_COMPLETE_PHRASE}"'
        )

    return instruction


def _value(member: object) -> str:
    """enum이면 value, 아니면 문자열 그대로 (None → 빈 문자열)."""
    if member is None:
        return ""
    return str(getattr(member, "value", member))


# =============================================================================
# Conversation
# =============================================================================


def build_chat_contents(
    history: Iterable[ChatMessage] | None,
    new_message: str | None,
) -> list[ChatTurn]:
    """
    대화 이력 → ChatTurn 목록.

    - role이 "model"이 아니면 모두 "user"로 취급
    - 내용이 빈 턴은 제외 (API가 빈 parts를 거부)
    - new_message가 있으면 마지막 user 턴으로 추가
    """
    turns: list[ChatTurn] = []
    for message in history or []:
        if not message.content:
            continue
        role = "model" if message.role == "model" else "user"
        turns.append(ChatTurn(role=role, text=message.content))

    if new_message:
        turns.append(ChatTurn(role="user", text=new_message))

    return turns


# =============================================================================
# Endpoint Prompts
# =============================================================================


def ats_prompt(job_role: str) -> str:
    return (
        f'Analyze this resume for a "{job_role}" position. Evaluate ATS compatibility, '
        "keywords, and quality. Provide a score (0-100), a list of strengths, and a "
        f"list of improvements. {JSON_ONLY}"
    )


def resume_text_part(resume_text: str) -> str:
    return f"Resume Text:\n{resume_text}"


def mcq_prompt(role: str) -> str:
    return (
        f'Generate {MCQ_QUESTION_COUNT} technical multiple-choice questions for a "{role}". '
        f"For each, provide {MCQ_OPTION_COUNT} options and the correct answer. "
        "The correct answer must be exactly one of the options. "
        f"{JSON_ONLY}"
    )


def dsa_question_prompt(config: InterviewConfig) -> str:
    return (
        "Generate a DSA problem for a coding challenge. "
        f"Topic: {_value(config.dsa_topic)}, Difficulty: {_value(config.dsa_difficulty)}. "
        "Provide a title, detailed description, 2-3 examples with explanations, "
        f"constraints, and {DSA_TEST_CASE_COUNT} diverse test cases (input and "
        f"expectedOutput). {JSON_ONLY}"
    )


def run_dsa_prompt(question: DSAQuestion, code: str, language: str) -> str:
    test_cases = json.dumps(
        [case.to_json() for case in question.test_cases],
        ensure_ascii=False,
        separators=(",", ":"),
    )
    return (
        "You are a code execution engine. Given a question, a user's code in "
        f"{language}, and test cases, execute the code against each test case.\n"
        f"Question: {question.description}\n"
        f"Code: ```{language.lower()}\n{code}\n```\n"
        f"Test Cases: {test_cases}\n"
        'Respond ONLY with a JSON object with a key "results", which is an array of '
        'objects. Each object must have keys: "input", "expected", "actual" (the '
        'code\'s output), and "passed" (a boolean).'
    )


def review_dsa_prompt(question: DSAQuestion, code: str, language: str) -> str:
    return (
        "You are a senior engineer providing a code review. Review the following code "
        f'solution in {language} for the problem titled "{question.title}". '
        f'Problem Description: "{question.description}". Provide constructive feedback '
        "on correctness, efficiency (time/space complexity), and code style/readability. "
        "Format the response in clear markdown. Solution to review:\n"
        f"```{language.lower()}\n{code}\n```"
    )


def dsa_solution_prompt(question: DSAQuestion, language: str) -> str:
    return (
        f'Provide an optimal, commented solution in {language} for the problem: "{question.title}". '
        f'Description: "{question.description}". Respond ONLY with the raw code for the '
        "solution, without any surrounding text or markdown formatting."
    )


def translate_code_prompt(code: str, from_language: str, to_language: str) -> str:
    return (
        f"Translate this code from {from_language} to {to_language}. Preserve all logic "
        "and comments. Respond ONLY with the raw translated code, with no explanations "
        "or markdown formatting.\n\n"
        f"Code to translate:\n```{from_language.lower()}\n{code}\n```"
    )


def delivery_prompt(transcript: str) -> str:
    words = ", ".join(FILLER_WORDS)
    return (
        f"Analyze this transcript for common filler words ({words}). Count how many "
        "times each filler word occurs and list only the words that occur at least once. "
        'Respond ONLY with a valid JSON object matching the schema: { "fillerWords": '
        '[{ "word": "um", "count": 3 }, { "word": "like", "count": 5 }] }. '
        f'Transcript: "{transcript}"'
    )


def tech_question_prompt(role: str, language: str) -> str:
    return (
        "Generate one concise coding question suitable for a live technical interview "
        f"for a {role} position, solvable in about 15-20 minutes. The question should be "
        f"answerable using {language}. Provide only the question text as a plain string, "
        "without examples or constraints."
    )


def review_solution_prompt(question: str, code: str, language: str) -> str:
    return (
        f'As an interviewer, briefly review this coding solution. Question: "{question}". '
        f"Code in {language}:\n```{code}```\n"
        "Provide concise feedback on its correctness, style, and efficiency. "
        "Format the response in markdown."
    )
