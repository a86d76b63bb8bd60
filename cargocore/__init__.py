"""
CargoCore 3PL Operations Dashboard

Backend for a third-party logistics operations dashboard: pulls product and
shipment records from upstream analytics endpoints, derives KPIs, cost
baselines and risk scores, and narrates them with an optional LLM.
"""

__version__ = "1.0.0"
