# terminal/config.py - front-desk terminal settings
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

API_BASE = os.getenv('TERMINAL_API_BASE', 'http://127.0.0.1:8000').rstrip('/')
HTTP_TIMEOUT = float(os.getenv('TERMINAL_HTTP_TIMEOUT', '10'))
MIRROR_FILE = os.getenv('TERMINAL_MIRROR_FILE', str(Path.home() / '.hotel-terminal' / 'mirror.json'))
ROOM_COUNT = int(os.getenv('LEDGER_ROOM_COUNT', '29'))
DEFAULT_RATE = int(os.getenv('LEDGER_DEFAULT_RATE', '1500'))


def websocket_url(api_base=API_BASE):
    if api_base.startswith('https://'):
        return 'wss://' + api_base[len('https://'):] + '/ws/ledger/'
    if api_base.startswith('http://'):
        return 'ws://' + api_base[len('http://'):] + '/ws/ledger/'
    return api_base + '/ws/ledger/'
