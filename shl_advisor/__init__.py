"""
Top-level package for the SHL assessment advisor.

The advisor answers free-text hiring queries with catalogued SHL
assessments.  An injected answer chain (LLM plus vector search) produces
raw text; this package normalizes that text into validated
recommendation records, serves it over a small FastAPI app, and scores
recommendation quality against benchmark queries.  There are no
side-effects on import.
"""
