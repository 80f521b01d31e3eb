"""
Planning Constants

Defaults used when seeding plans and rendering plan titles.
"""

# Days inserted into every brand-new plan, in display order
DEFAULT_DAY_NAMES = ['Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday']

DEFAULT_PLAN_TITLE = 'Menu'

# Settings key holding the plan shown to signed-out visitors
FEATURED_PLAN_SETTING = 'featured_plan_id'

# Cuisine suggestions offered by the meal form
CUISINE_SUGGESTIONS = sorted([
    # Southeast Asia
    'Thai', 'Vietnamese', 'Indonesian', 'Malaysian', 'Filipino',
    'Singaporean', 'Burmese', 'Cambodian', 'Laotian',
    # East Asia
    'Japanese', 'Korean', 'Chinese',
    # Europe
    'Italian', 'French', 'Spanish', 'Greek', 'German', 'British',
    'Portuguese', 'Turkish', 'Polish', 'Dutch', 'Belgian', 'Swiss',
    'Swedish', 'Norwegian', 'Danish', 'Austrian', 'Irish', 'Croatian',
    'Hungarian', 'Czech',
    'Mediterranean', 'Asian Fusion',
])
