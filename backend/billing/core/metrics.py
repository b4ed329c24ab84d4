"""Prometheus metrics for the application"""
from prometheus_client import Counter, REGISTRY

# Webhook ingestion metrics
try:
    webhook_events_counter = Counter(
        'billing_webhook_events_total',
        'Total number of Stripe webhook deliveries by outcome',
        ['event_type', 'outcome']
    )
except ValueError:
    webhook_events_counter = REGISTRY._names_to_collectors.get('billing_webhook_events_total')

# Downstream notification metrics
try:
    zeus_notifications_counter = Counter(
        'billing_zeus_notifications_total',
        'Total number of Zeus subscription notifications by result',
        ['status', 'result']
    )
except ValueError:
    zeus_notifications_counter = REGISTRY._names_to_collectors.get('billing_zeus_notifications_total')
