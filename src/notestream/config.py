"""Local configuration for notestream."""

from __future__ import annotations

import os


DEFAULT_API_URL = "https://api.groq.com/openai/v1/chat/completions"
DEFAULT_MODEL = "llama-3.1-8b-instant"
DEFAULT_REQUEST_TIMEOUT_S = 30.0
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TEMPERATURE = 0.1
DEFAULT_MIN_PROCESS_INTERVAL_S = 2.0
DEFAULT_CONFIDENCE_THRESHOLD = 0.5
DEFAULT_SIMILARITY_THRESHOLD = 0.6
DEFAULT_HALLUCINATION_RATIO = 3.0
DEFAULT_ANIMATION_DELAY_SCALE = 1.0
DEFAULT_USER_AGENT = "notestream/0.1"

# Credentials for the OpenAI-compatible generator. GROQ_API_KEY is accepted for
# deployments that already export it.
NOTESTREAM_API_KEY = os.getenv("NOTESTREAM_API_KEY") or os.getenv("GROQ_API_KEY")
NOTESTREAM_API_URL = os.getenv("NOTESTREAM_API_URL", DEFAULT_API_URL)
NOTESTREAM_MODEL = os.getenv("NOTESTREAM_MODEL", DEFAULT_MODEL)
NOTESTREAM_REQUEST_TIMEOUT_S = float(os.getenv("NOTESTREAM_REQUEST_TIMEOUT_S", str(DEFAULT_REQUEST_TIMEOUT_S)))
NOTESTREAM_MAX_TOKENS = int(os.getenv("NOTESTREAM_MAX_TOKENS", str(DEFAULT_MAX_TOKENS)))
NOTESTREAM_TEMPERATURE = float(os.getenv("NOTESTREAM_TEMPERATURE", str(DEFAULT_TEMPERATURE)))
NOTESTREAM_MIN_PROCESS_INTERVAL_S = float(
    os.getenv("NOTESTREAM_MIN_PROCESS_INTERVAL_S", str(DEFAULT_MIN_PROCESS_INTERVAL_S))
)
NOTESTREAM_CONFIDENCE_THRESHOLD = float(
    os.getenv("NOTESTREAM_CONFIDENCE_THRESHOLD", str(DEFAULT_CONFIDENCE_THRESHOLD))
)
NOTESTREAM_SIMILARITY_THRESHOLD = float(
    os.getenv("NOTESTREAM_SIMILARITY_THRESHOLD", str(DEFAULT_SIMILARITY_THRESHOLD))
)
NOTESTREAM_HALLUCINATION_RATIO = float(
    os.getenv("NOTESTREAM_HALLUCINATION_RATIO", str(DEFAULT_HALLUCINATION_RATIO))
)
# Multiplier applied to every animator delay; 0 disables pacing.
NOTESTREAM_ANIMATION_DELAY_SCALE = float(os.getenv("NOTESTREAM_ANIMATION_DELAY_SCALE", str(DEFAULT_ANIMATION_DELAY_SCALE)))
NOTESTREAM_USER_AGENT = os.getenv("NOTESTREAM_USER_AGENT", DEFAULT_USER_AGENT)
