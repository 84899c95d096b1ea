"""Grade computation for exam results."""

# (minimum percentage, grade), highest first
GRADE_SCALE: tuple[tuple[float, str], ...] = (
    (80, "A+"),
    (70, "A"),
    (60, "A-"),
    (50, "B"),
    (40, "C"),
    (33, "D"),
)


def calculate_grade(marks: float, total_marks: float) -> str:
    """Letter grade for marks out of total_marks"""
    if total_marks <= 0:
        raise ValueError("total_marks must be positive")
    if marks < 0 or marks > total_marks:
        raise ValueError("marks must be between 0 and total_marks")

    percentage = marks / total_marks * 100
    for threshold, grade in GRADE_SCALE:
        if percentage >= threshold:
            return grade
    return "F"
