"""
rwatch.viz — Read-only transforms over fetched relationships and aggregates.

## Responsibilities
- Provide Polars-first frames for the dashboard tables (aggregates, relationships, breakdowns,
  strategy risk).
- Offer search/sort/pagination and risk-filter helpers for those frames.
- Never mutate core models; read-only by contract.

## Import DAG discipline
- Depends on: rwatch.core, polars (and stdlib).
- Must not perform network IO (no rwatch.io imports at runtime).

## Examples
```python
from rwatch.core import aggregate_relationships
from rwatch.viz.frames import aggregates_frame, sort_frame, paginate
df = aggregates_frame(aggregate_relationships(rels))  # doctest: +SKIP
paginate(sort_frame(df, "total_eth"), page=1, page_size=20)  # doctest: +SKIP
```
"""
