"""
api/sample_questions.py — built-in sample exam (no import needed)
"""

from mock_exam_cbt.models.question_model import ExamDefinition, Question

SAMPLE_EXAM_ID = "sample-budgeting"

_QUESTIONS = [
    ("What is the main advantage of using a rolling budget instead of an annual budget?",
     ["It requires less effort to create.",
      "It provides a longer-term financial outlook.",
      "It allows for more flexibility in adapting to changing circumstances.",
      "It is a legal requirement for some businesses."],
     "It allows for more flexibility in adapting to changing circumstances.",
     "Budgeting Methods"),
    ("Which financial statement provides information about a company's revenues and expenses over a specific period?",
     ["Balance Sheet", "Cash Flow Statement", "Income Statement", "Statement of Retained Earnings"],
     "Income Statement",
     "Financial Statements"),
    ("What is the primary purpose of a cash flow forecast?",
     ["To predict future profits", "To determine tax liabilities",
      "To anticipate cash shortages or surpluses", "To calculate shareholder dividends"],
     "To anticipate cash shortages or surpluses",
     "Cash Flow"),
    ("Which budgeting approach starts from zero and requires justification for all expenses?",
     ["Incremental budgeting", "Zero-based budgeting", "Activity-based budgeting", "Flexible budgeting"],
     "Zero-based budgeting",
     "Budgeting Methods"),
    ("What does the term 'variance analysis' refer to in budgeting?",
     ["Comparing actual results with budgeted figures", "Analyzing different budget scenarios",
      "Calculating statistical variance in financial data", "Determining the variance in product pricing"],
     "Comparing actual results with budgeted figures",
     "Financial Analysis"),
    ("Which of the following is NOT typically included in an operating budget?",
     ["Sales forecast", "Production budget", "Capital expenditure plan", "Marketing expenses"],
     "Capital expenditure plan",
     "Budgeting Methods"),
    ("What is a 'bottom-up' approach to budgeting?",
     ["Starting with profits and working backward",
      "Beginning with department-level inputs and consolidating upward",
      "Starting with executive directives and working downward",
      "Focusing primarily on cost reduction"],
     "Beginning with department-level inputs and consolidating upward",
     "Budgeting Methods"),
    ("Which financial ratio helps assess a company's ability to pay its short-term obligations?",
     ["Debt-to-equity ratio", "Return on assets", "Current ratio", "Gross profit margin"],
     "Current ratio",
     "Financial Analysis"),
    ("What is the break-even point in financial planning?",
     ["The point where total revenue equals total expenses", "The maximum profit a business can achieve",
      "The point where cash flow becomes positive", "The point where all debt is repaid"],
     "The point where total revenue equals total expenses",
     "Financial Analysis"),
    ("Which of the following best describes a contribution margin?",
     ["Total revenue minus total expenses", "Sales revenue minus variable costs",
      "Gross profit minus operating expenses", "Net income plus depreciation"],
     "Sales revenue minus variable costs",
     "Financial Analysis"),
]


def sample_exam() -> ExamDefinition:
    """Fresh copy of the sample exam (30 minutes, 10 questions)."""
    return ExamDefinition(
        id=SAMPLE_EXAM_ID,
        name="Business Budgeting and Forecasting Exam",
        subject="Business Finance",
        time_limit=30,
        questions=[
            Question(id=f"q{n}", question=text, options=options, correct_answer=answer, category=category)
            for n, (text, options, answer, category) in enumerate(_QUESTIONS, start=1)
        ],
    )
