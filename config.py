import os
from dotenv import load_dotenv
from pathlib import Path

load_dotenv()

# credentials (names of the environment variables, values are read at startup)
SPEECH_KEY_ENV = "SPEECH_KEY"
SPEECH_REGION_ENV = "SPEECH_REGION"

# logging config
LOG_LEVEL = os.getenv("LOG_LEVEL", "PROD").upper()

# file config
BASE_PATH = Path(__file__).parent
LOG_PATH = BASE_PATH / "log"
LOG_PATH.mkdir(exist_ok=True)
# Speech SDK trace, enabled for translation sessions only.
SDK_LOG_FILE = LOG_PATH / "speech_sdk.log"

# Audio input
# Only WAV is accepted, the SDK reads the RIFF header itself.
SUPPORTED_AUDIO_EXTENSIONS = (".wav",)

# Speech service parameters
# https://learn.microsoft.com/azure/ai-services/speech-service/display-text-format#profanity-filter
# One of: Masked, Removed, Raw
PROFANITY_OPTION = os.getenv("SPEECH_PROFANITY_OPTION", "Masked")
# Partial (RECOGNIZING) results are very chatty, allow turning them off.
SHOW_PARTIALS = os.getenv("SPEECH_SHOW_PARTIALS", "1").lower() not in ("0", "false", "no")
