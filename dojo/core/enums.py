from enum import Enum


class FeeStructure(str, Enum):
    two_classes = "two_classes"
    four_classes = "four_classes"


class FeeStatus(str, Enum):
    unpaid = "unpaid"
    partial = "partial"
    paid = "paid"


class AttendanceStatus(str, Enum):
    present = "present"
    absent = "absent"
    late = "late"


class TestResult(str, Enum):
    __test__ = False  # keep pytest from collecting this as a test class

    pending = "pending"
    passed = "passed"
    failed = "failed"


class Gender(str, Enum):
    male = "male"
    female = "female"
    other = "other"


class AppRole(str, Enum):
    admin = "admin"
    instructor = "instructor"
    viewer = "viewer"


class BeltLevel(str, Enum):
    """Belt ranks in progression order (declaration order is rank order)."""

    white = "white"
    yellow_stripe = "yellow_stripe"
    yellow = "yellow"
    green_stripe = "green_stripe"
    green = "green"
    blue_stripe = "blue_stripe"
    blue = "blue"
    red_stripe = "red_stripe"
    red = "red"
    red_black = "red_black"
    black_1st_dan = "black_1st_dan"
    black_2nd_dan = "black_2nd_dan"
    black_3rd_dan = "black_3rd_dan"
    black_4th_dan = "black_4th_dan"
    black_5th_dan = "black_5th_dan"
