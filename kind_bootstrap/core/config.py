import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(Path(__file__).parent.parent.parent.absolute(), '.env'))

LOG_LEVEL = os.getenv('KIND_BOOTSTRAP_LOG_LEVEL', 'INFO').upper()
