TOPIC_PROGRESSION = {
    "algebra-basics": "linear-equations",
    "linear-equations": "quadratics",
    "quadratics": "functions",
    "functions": "graphing",
    "graphing": "systems",
}

DEFAULT_NEXT_TOPIC = "functions"

TOPIC_TITLES = {
    "algebra-basics": "Algebra Basics",
    "linear-equations": "Linear Equations",
    "quadratics": "Quadratic Equations",
    "functions": "Introduction to Functions",
    "graphing": "Graphing Functions",
    "systems": "Systems of Equations",
}

BADGE_EVERY = 3
