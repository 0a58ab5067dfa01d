"""
Constants for tardiness bands and reference rule codes
"""

# Minutes-late bands (inclusive)
LATE_ARRIVAL_START = 1
LATE_ARRIVAL_END = 15
DIRECT_TARDINESS_START = 16

# Seeded tardiness rule codes
TARDINESS_RULE_LATE_ARRIVAL = "tr_late_arrival_001"
TARDINESS_RULE_POST_FIRST_TARDINESS = "tr_post_first_tardiness"
TARDINESS_RULE_DIRECT_TARDINESS = "tr_direct_tardiness_001"

# Seeded disciplinary rule codes
DISCIPLINARY_RULE_FIVE_TARDIES = "dar_formal_tardies_5"
DISCIPLINARY_RULE_THREE_ACTS = "dar_admin_acts_3_termination"
DISCIPLINARY_RULE_ONE_ABSENCE = "dar_absence_1"
DISCIPLINARY_RULE_TWO_ABSENCES = "dar_absence_2"
DISCIPLINARY_RULE_THREE_ABSENCES = "dar_absence_3"
DISCIPLINARY_RULE_FOUR_ABSENCES = "dar_absence_4_termination"

# Default look-back windows in days
PERIOD_DAYS_TARDIES = 30
PERIOD_DAYS_ACTS = 90
PERIOD_DAYS_ABSENCES = 30

# Look-back windows of the per-employee disciplinary stats
STATS_SHORT_WINDOW_DAYS = 30
STATS_LONG_WINDOW_DAYS = 90
