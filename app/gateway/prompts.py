"""System prompts for the chat-completion backed actions."""

SUMMARY_SYSTEM_PROMPT = (
    "You are an educational assistant. Summarize the provided text in simple language (up to 30 words). "
    "Do not alter the meaning. Ensure clarity and conciseness."
)

SYMPTOMS_SYSTEM_PROMPT = (
    "You are an educational health assistant, not a doctor. Suggest possible conditions in 30 words or less. "
    "Suggest common over-the-counter medications or remedies in 20 words or less, if applicable. "
    "Do not diagnose or prescribe. For serious symptoms (e.g., chest pain), urge immediate medical attention. "
    'Include: "This is not a medical diagnosis or prescription. '
    'All suggestions must be verified by a healthcare professional."'
)

SUMMARY_PARAMS = {"max_tokens": 150, "temperature": 0.7, "top_p": 1.0}
SYMPTOMS_PARAMS = {"max_tokens": 150, "temperature": 0.7}


def summary_user_content(text: str) -> str:
    return f"Text: {text}"


def symptoms_user_content(symptoms: str) -> str:
    return f"Symptoms: {symptoms}"
