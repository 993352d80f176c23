"""Protocol layer: command frames, response framing, and response parsing."""

from .commands import Command, encode_frame, wipe_frame
from .framing import read_greeting, read_single, read_stream
from .parser import ErrResponse, OkResponse, decode_response
