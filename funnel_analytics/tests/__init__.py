'''
Funnel Analytics Test Suite

Test Modules:
-------------
- test_aggregation.py: Monthly aggregation, guarded rates, recurring cash
- test_trends.py: Month-over-month trends, severity bands, record highs
- test_attribution.py: Video and country attribution
- test_campaigns.py: Email campaign and traffic source metrics
- test_funnel.py: Drop-off detection, funnel stages, product breakdown
- test_insights.py: Rule-based insights and the OpenAI fallback path
- test_alerts.py: Threshold evaluation and the AlertFeed channel
- test_formatting.py: Currency, number and percentage formatting
- test_ingestion.py: CSV event feed validation and loading
- test_mock_data.py: Mock event generator consistency
- test_api_clients.py: YouTube, Kajabi and Cal.com clients
- test_api.py: FastAPI routes

Running Tests:
--------------
    pytest funnel_analytics/tests/
    pytest funnel_analytics/tests/ -m "not integration"
'''
