"""
Data migration: seed the local question bank used when AI generation is unavailable.
Uses get_or_create so it is safe to run multiple times (idempotent).
"""
from django.db import migrations

QUESTIONS = [
    # ── SAT ──────────────────────────────────────────────────────────
    {
        "exam": "SAT",
        "topic": "Algebra",
        "difficulty": "easy",
        "text": "If 3x + 7 = 22, what is the value of x?",
        "options": ["3", "5", "7", "15"],
        "correct_index": 1,
        "explanation": "Subtract 7 from both sides to get 3x = 15, then divide by 3: x = 5.",
    },
    {
        "exam": "SAT",
        "topic": "Algebra",
        "difficulty": "medium",
        "text": "The line y = mx + 4 passes through the point (2, 10). What is the value of m?",
        "options": ["2", "3", "5", "7"],
        "correct_index": 1,
        "explanation": "Substitute the point: 10 = 2m + 4, so 2m = 6 and m = 3.",
    },
    {
        "exam": "SAT",
        "topic": "Geometry",
        "difficulty": "medium",
        "text": "A right triangle has legs of length 6 and 8. What is the length of its hypotenuse?",
        "options": ["10", "12", "14", "48"],
        "correct_index": 0,
        "explanation": "By the Pythagorean theorem, 6² + 8² = 36 + 64 = 100, so the hypotenuse is 10.",
    },
    {
        "exam": "SAT",
        "topic": "Problem Solving and Data Analysis",
        "difficulty": "easy",
        "text": "A shirt that costs $40 is on sale for 25% off. What is the sale price?",
        "options": ["$10", "$25", "$30", "$35"],
        "correct_index": 2,
        "explanation": "25% of $40 is $10, so the sale price is $40 - $10 = $30.",
    },
    {
        "exam": "SAT",
        "topic": "Reading and Writing",
        "difficulty": "medium",
        "text": "Which choice completes the text with the most logical and precise word? "
                "The scientist's findings were so ______ that other researchers could reproduce them easily.",
        "options": ["ambiguous", "robust", "fleeting", "obscure"],
        "correct_index": 1,
        "explanation": "Results that others can reproduce easily are robust; the other choices suggest the opposite.",
    },
    {
        "exam": "SAT",
        "topic": "Reading and Writing",
        "difficulty": "hard",
        "text": "Which choice best states the main idea of the passage?",
        "options": [
            "Bees are declining because of a single pesticide.",
            "Urban gardens can provide meaningful habitat for pollinators.",
            "City planners dislike rooftop gardens.",
            "Pollinators cannot survive outside rural areas.",
        ],
        "correct_index": 1,
        "explanation": "The passage argues that rooftop and community gardens support pollinator populations in cities.",
        "passage": "Once dismissed as ecological dead zones, cities are increasingly recognized as refuges "
                   "for pollinators. Researchers surveying rooftop and community gardens found bee "
                   "species diversity comparable to that of nearby farmland, suggesting that small, "
                   "scattered green spaces can together sustain healthy pollinator populations.",
    },
    # ── ACT ──────────────────────────────────────────────────────────
    {
        "exam": "ACT",
        "topic": "Math",
        "difficulty": "easy",
        "text": "What is the value of 2³ + 4²?",
        "options": ["14", "22", "24", "32"],
        "correct_index": 2,
        "explanation": "2³ = 8 and 4² = 16, so the sum is 24.",
    },
    {
        "exam": "ACT",
        "topic": "Math",
        "difficulty": "medium",
        "text": "What is the slope of the line through the points (1, 2) and (4, 11)?",
        "options": ["2", "3", "4", "9"],
        "correct_index": 1,
        "explanation": "Slope = (11 - 2) / (4 - 1) = 9 / 3 = 3.",
    },
    {
        "exam": "ACT",
        "topic": "Science",
        "difficulty": "medium",
        "text": "In an experiment, a student varies the temperature of water and measures how much sugar "
                "dissolves. What is the independent variable?",
        "options": ["Amount of sugar dissolved", "Temperature of water", "Type of container", "Volume of water"],
        "correct_index": 1,
        "explanation": "The independent variable is the one the experimenter deliberately changes: temperature.",
    },
    {
        "exam": "ACT",
        "topic": "English",
        "difficulty": "easy",
        "text": "Which choice is grammatically correct? \"Each of the students ______ a notebook.\"",
        "options": ["have", "has", "are having", "were having"],
        "correct_index": 1,
        "explanation": "\"Each\" is singular, so it takes the singular verb \"has\".",
    },
    {
        "exam": "ACT",
        "topic": "English",
        "difficulty": "medium",
        "text": "Which punctuation correctly joins the clauses? \"The storm ended ______ the game resumed.\"",
        "options": [", ", "; ", " ", ": and"],
        "correct_index": 1,
        "explanation": "Two independent clauses can be joined by a semicolon; a comma alone creates a splice.",
    },
    {
        "exam": "ACT",
        "topic": "Reading",
        "difficulty": "medium",
        "text": "As used in the sentence \"The committee tabled the proposal until spring,\" tabled most nearly means:",
        "options": ["approved", "postponed", "rejected", "printed"],
        "correct_index": 1,
        "explanation": "To table a proposal is to set it aside for later consideration.",
    },
    # ── AP ───────────────────────────────────────────────────────────
    {
        "exam": "AP",
        "topic": "Calculus",
        "difficulty": "easy",
        "text": "What is the derivative of f(x) = x³?",
        "options": ["x²", "3x²", "3x³", "x⁴/4"],
        "correct_index": 1,
        "explanation": "By the power rule, d/dx xⁿ = n·xⁿ⁻¹, so the derivative is 3x².",
    },
    {
        "exam": "AP",
        "topic": "Calculus",
        "difficulty": "medium",
        "text": "What is the limit of sin(x)/x as x approaches 0?",
        "options": ["0", "1", "∞", "Does not exist"],
        "correct_index": 1,
        "explanation": "This is a standard limit: sin(x)/x → 1 as x → 0.",
    },
    {
        "exam": "AP",
        "topic": "Biology",
        "difficulty": "easy",
        "text": "Which organelle is the primary site of ATP production in eukaryotic cells?",
        "options": ["Ribosome", "Golgi apparatus", "Mitochondrion", "Lysosome"],
        "correct_index": 2,
        "explanation": "Mitochondria produce most of the cell's ATP through cellular respiration.",
    },
    {
        "exam": "AP",
        "topic": "Chemistry",
        "difficulty": "medium",
        "text": "What is the pH of a 0.001 M solution of HCl?",
        "options": ["1", "2", "3", "11"],
        "correct_index": 2,
        "explanation": "HCl dissociates completely, so [H⁺] = 10⁻³ M and pH = 3.",
    },
    {
        "exam": "AP",
        "topic": "Physics",
        "difficulty": "medium",
        "text": "A 2 kg object accelerates at 3 m/s². What net force acts on it?",
        "options": ["1.5 N", "5 N", "6 N", "9 N"],
        "correct_index": 2,
        "explanation": "Newton's second law: F = ma = 2 kg × 3 m/s² = 6 N.",
    },
    {
        "exam": "AP",
        "topic": "US History",
        "difficulty": "hard",
        "text": "The Louisiana Purchase of 1803 was negotiated with which country?",
        "options": ["Spain", "Great Britain", "France", "Mexico"],
        "correct_index": 2,
        "explanation": "The United States bought the Louisiana Territory from Napoleonic France.",
    },
]


def seed_questions(apps, schema_editor):
    BankQuestion = apps.get_model('testprep', 'BankQuestion')
    for q in QUESTIONS:
        BankQuestion.objects.get_or_create(
            text=q["text"],
            defaults={
                "exam": q["exam"],
                "topic": q["topic"],
                "difficulty": q["difficulty"],
                "options": q["options"],
                "correct_index": q["correct_index"],
                "explanation": q["explanation"],
                "passage": q.get("passage", ""),
            },
        )


def unseed_questions(apps, schema_editor):
    BankQuestion = apps.get_model('testprep', 'BankQuestion')
    texts = [q["text"] for q in QUESTIONS]
    BankQuestion.objects.filter(text__in=texts).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('testprep', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(seed_questions, unseed_questions),
    ]
