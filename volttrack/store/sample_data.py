"""
Sample records seeded on first run, when storage holds no record set yet.
Stored in the same camelCase shape the dashboard persists.
"""

SAMPLE_RECORDS = [
    {
        "id": "1",
        "serialNumber": "TR-2024-001",
        "customerName": "PowerCorp Ind",
        "project": "Substation Alpha",
        "dispatchDate": "2024-01-15",
        "ratingKVA": 500,
        "voltageRatio": "11/0.433",
        "commissioningDueDate": "2024-02-15",
        "sourceWarehouse": "Rabale",
        "shippingAddress": "123 Power Ln, Houston, TX",
        "warrantyMonthsComm": 12,
        "warrantyMonthsDispatch": 18,
        "warrantyDateDispatch": "2025-07-15",
        "warrantyDateComm": "2025-02-10",
        "pbgAmount": 15000,
        "pbgDueDate": "2024-03-01",
        "commissioningDoneDate": "2024-02-10",
        "status": "Commissioned",
        "salesPerson": "John Doe",
        "territory": "North",
        "state": "Texas",
        "narration": "Priority installation requested."
    },
    {
        "id": "2",
        "serialNumber": "TR-2024-002",
        "customerName": "City Infra Ltd",
        "project": "Metro Expansion",
        "dispatchDate": "2024-02-01",
        "ratingKVA": 1000,
        "voltageRatio": "33/11",
        "commissioningDueDate": "2024-03-01",
        "sourceWarehouse": "Taloja",
        "shippingAddress": "45 Metro Way, Chicago, IL",
        "warrantyMonthsComm": 24,
        "warrantyMonthsDispatch": 30,
        "warrantyDateDispatch": "2026-08-01",
        "warrantyDateComm": "2026-03-01",
        "pbgAmount": 25000,
        "pbgDueDate": "2024-04-15",
        "commissioningDoneDate": None,
        "status": "Dispatched",
        "salesPerson": "Jane Smith",
        "territory": "Midwest",
        "state": "Illinois",
        "narration": "Delay in site readiness."
    }
]
