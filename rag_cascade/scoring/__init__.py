"""
scoring/ - RAG cascade engine

Modules:
    utils.py                  - Decimal utilities
    band_registry.py          - Band label -> weight lookup per indicator
    customer_aggregator.py    - Per-customer average of band weights
    indicator_evaluator.py    - Indicator percentage from customer averages
    formula_evaluator.py      - AVG / SUM / MIN / MAX / WEIGHTED_AVG reducer
    rag_classifier.py         - Percentage -> Red / Amber / Green / Not Set
    snapshot_recorder.py      - Explainability records and snapshot commits
    cascade_orchestrator.py   - Bottom-up scheduler over the hierarchy
    recompute_events.py       - Event-driven path recomputes
"""
