"""
Backend QueueTrust: crowdsourced checkpoint wait-time aggregation.

Fuses crowdsourced queue-wait reports with an official reference feed into
one confidence-scored estimate per checkpoint, and reconciles past reports
against later ground truth to keep a per-submitter reputation score.
"""

__version__ = "0.1.0"
