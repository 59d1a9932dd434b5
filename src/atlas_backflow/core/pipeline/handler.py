"""
Contrato canônico de handler de operação do Atlas BackFlow.

Um handler é a única peça do interpretador que toca sistemas externos.
Existe exatamente um handler por família (api, database, file, cloud,
messaging); cada um expõe apenas os verbos da sua família.

Responsabilidades de um handler:
    - ser construído a partir do payload resolvido do step, sem I/O
    - executar o verbo solicitado, realizando I/O somente dentro do verbo
    - retornar o resultado bruto (ou levantar exceção)

Princípios fundamentais:
    - Handlers não conhecem o executor nem o param store
    - Handlers não fazem retry nem validação
    - Conformidade é garantida por duck typing (@runtime_checkable)

Limites explícitos:
    - Não escreve no param store
    - Não decide políticas de retry, delay ou retorno antecipado
"""

from __future__ import annotations

from typing import Any, Callable, FrozenSet, Mapping, Optional, Protocol, runtime_checkable

from atlas_backflow.core.errors import unknown_operation


@runtime_checkable
class OperationHandler(Protocol):
    """
    Contrato mínimo de um handler de família.

    Atributos obrigatórios:
        - family: nome canônico da família
        - verbs: conjunto fechado de verbos aceitos

    Invariantes:
        - `invoke` faz no máximo uma chamada de backend por tentativa
        - Construir o handler nunca realiza I/O
    """
    family: str
    verbs: FrozenSet[str]

    def invoke(self, verb: str) -> Any:
        """Executa o verbo `verb` e retorna o resultado bruto."""
        ...


HandlerFactory = Callable[[Mapping[str, Any], Optional[Mapping[str, Any]]], OperationHandler]


def invoke_verb(handler: Any, verb: str) -> Any:
    """Despacha `verb` para o método homônimo do handler, se a família o expõe."""
    verbs = getattr(handler, "verbs", frozenset())
    method = getattr(handler, verb, None) if verb in verbs else None
    if method is None or not callable(method):
        raise unknown_operation(family=getattr(handler, "family", None), action=verb)
    return method()
