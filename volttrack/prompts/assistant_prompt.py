"""Assistant prompt with dynamic date"""
from datetime import datetime


def get_assistant_prompt(question: str, data_json: str) -> str:
    """Get the free-form question prompt with the full record set"""
    current_date = datetime.now().strftime("%B %d, %Y")

    return f"""You are an intelligent assistant for a Transformer Manufacturing MIS system.
Answer the user's question based strictly on the provided data below.
Keep the answer concise and professional.
A record whose status is not Commissioned and whose commissioningDueDate is before the current date is overdue.
CURRENT DATE: {current_date}

Data: {data_json}

User Question: {question}
"""
