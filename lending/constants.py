MAX_LOAN_DAYS = 30  # longest a single book may be out
MAX_ACTIVE_LOANS = 5
OVERDUE_FINE_PER_DAY = 0.50
DEFAULT_CURRENCY = "USD"
