# src/atlas_backflow/core/__init__.py
"""
Core do Atlas BackFlow.

Este pacote contém a implementação canônica e independente de backends
do interpretador de workflows:

    - config   → carregamento de workflows/settings, merge e hashing
    - pipeline → tipos, contexto de execução, protocolo de handler e registry
    - values   → resolver de placeholders, validador e extrator
    - engine   → executor sequencial com retry e corrida de timeout
    - errors / exceptions → catálogo canônico de falhas

Princípios fundamentais:
    - Apenas handlers tocam sistemas externos
    - Resolver, validador e extrator são transformações puras de dados
    - Estado da run vive num RunContext explícito, nunca em singletons
"""
