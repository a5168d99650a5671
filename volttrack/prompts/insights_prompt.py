"""Insights prompt template"""


def get_insights_prompt(data_json: str) -> str:
    """Get the summary prompt for the simplified record projection"""
    return f"""Analyze the following MIS data for Transformer dispatches.
Provide a JSON response with the following structure:
{{
  "summary": "A brief 2-sentence summary of the current status.",
  "risks": ["Risk 1", "Risk 2"],
  "opportunities": ["Opportunity 1", "Opportunity 2"],
  "keyMetrics": {{
    "totalValueExposure": "Estimated calculation based on PBG or general context",
    "mostActiveCustomer": "Name of customer"
  }}
}}

Data: {data_json}
"""
