GPT_4O_MODEL = "gpt-4o"
GPT_4O_MINI_MODEL = "gpt-4o-mini"

OPENAI_PROVIDER = "openai"

SUB_ROLE_CLASSIFIER_MODEL_CONFIG = {
    "model": GPT_4O_MODEL,
    "provider": OPENAI_PROVIDER,
    "temperature": 0.0,
    "max_tokens": 500,
}

SUB_ROLE_SYNONYMS_MODEL_CONFIG = {
    "model": GPT_4O_MINI_MODEL,
    "provider": OPENAI_PROVIDER,
    "temperature": 0.5,
    "max_tokens": 200,
}

MAX_GENERATED_SYNONYMS = 5
