"""
Prompt construction for grounded answers.

The configured system prompt is followed by a forced grounding instruction
that makes the retrieved context authoritative, prescribes the refusal
sentence and forbids fabrication.
"""
import logging
from typing import List

from apps.rag.llm_client import LLMMessage

logger = logging.getLogger(__name__)

# Exact sentence the model must use when the context does not answer
REFUSAL_ANSWER = "Não encontrei essa informação nos documentos carregados."

GROUNDING_PROMPT = """Você TEM acesso ao banco interno de documentos (trechos relevantes já fornecidos abaixo).
Responda usando APENAS o conteúdo dos trechos fornecidos.
Se os trechos não tiverem a resposta, diga: "{refusal}"
Não invente informações nem use conhecimento externo.

TRECHOS:
{context}"""


def build_grounding_instruction(context: str) -> str:
    """Build the forced system instruction around a context block."""
    return GROUNDING_PROMPT.format(refusal=REFUSAL_ANSWER, context=context).strip()


def build_messages(system_prompt: str, context: str, question: str) -> List[LLMMessage]:
    """
    Assemble the completion message list.

    Order: configured system prompt, grounding instruction, user question.
    """
    grounding = build_grounding_instruction(context)
    logger.debug(f"Grounding instruction length: {len(grounding)} chars")

    return [
        LLMMessage(role="system", content=system_prompt),
        LLMMessage(role="system", content=grounding),
        LLMMessage(role="user", content=question),
    ]
