"""Runner demand monitoring for GitHub Actions workflow jobs.

rpulse ingests ``workflow_job`` webhook deliveries into durable job state and
answers fleet demand questions: how many jobs are running on GitHub-hosted
and self-hosted runners, how many are queued, how long jobs wait in the
queue, and how high demand peaked over a period.

Subpackages
-----------
jobs
    Job record store and queue latency recorder.
history
    Demand snapshots, rollup read models, and peak demand resolution.
ingestion
    The per-event ingestion pipeline.
demand
    The concurrent "current demand" aggregation query.
api
    Falcon ASGI surface for webhooks and dashboard reads.
"""
