# Generator package

# Makes generate/ importable and exposes key interfaces.

from .assembler import ContextAssembler
from .generator import ReplyGenerator
from .parser import parse_dual_reply
from .prompts import compile_messages, compile_prompt
from .types import (
    DialogueTurn,
    DualReply,
    GenerationRequest,
    Message,
    ModelParams,
    RelationshipDescriptor,
    StyleProfile,
)
from .clients.echo_dev_client import EchoDevClient

__all__ = [
    "ContextAssembler",
    "ReplyGenerator",
    "parse_dual_reply",
    "compile_prompt",
    "compile_messages",
    "DialogueTurn",
    "DualReply",
    "GenerationRequest",
    "Message",
    "ModelParams",
    "RelationshipDescriptor",
    "StyleProfile",
    "EchoDevClient",
]
