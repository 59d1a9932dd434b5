# src/atlas_backflow/core/engine/__init__.py
"""
Engine do Atlas BackFlow.

Este pacote contém o executor responsável por interpretar workflows
declarativos: iterar steps, despachar para handlers, aplicar o laço de
retry/validação e escrever valores extraídos no param store.

Componentes principais:
    - engine  → `FlowExecutor`, `FlowResult` e o ponto de entrada `run_flow`
    - timeout → corrida de uma chamada de backend contra um relógio

Invariantes:
    - Steps executam estritamente em sequência, na ordem declarada
    - O step N+1 só começa após o laço de retry do step N terminar
    - Apenas o executor escreve no param store

Limites explícitos:
    - Não persiste estado entre processos
    - Não executa steps em paralelo
"""
