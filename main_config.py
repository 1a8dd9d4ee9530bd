import os
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
PUBLIC_DIR = os.path.join(BASE_DIR, "public")

PROMPTS_DIR = os.path.join(BASE_DIR, "src", "chat_orchestrator", "prompts")
PERSONA_USER_PROMPT_PATH = os.path.join(PROMPTS_DIR, "musashi_persona_user.md")
PERSONA_MODEL_PROMPT_PATH = os.path.join(PROMPTS_DIR, "musashi_persona_model.md")
