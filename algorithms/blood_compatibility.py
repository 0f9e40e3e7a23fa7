# algorithms/blood_compatibility.py
"""
Blood Type Compatibility Helper
Determines which donor blood groups can donate to which recipient blood groups
"""

BLOOD_GROUPS = ['A+', 'A-', 'B+', 'B-', 'O+', 'O-', 'AB+', 'AB-']

BLOOD_GROUP_CHOICES = [(group, group) for group in BLOOD_GROUPS]

# Donor group -> recipient groups it can give to. Directional, not symmetric.
COMPATIBILITY = {
    'O-': ['O-', 'O+', 'A-', 'A+', 'B-', 'B+', 'AB-', 'AB+'],  # Universal donor
    'O+': ['O+', 'A+', 'B+', 'AB+'],
    'A-': ['A-', 'A+', 'AB-', 'AB+'],
    'A+': ['A+', 'AB+'],
    'B-': ['B-', 'B+', 'AB-', 'AB+'],
    'B+': ['B+', 'AB+'],
    'AB-': ['AB-', 'AB+'],
    'AB+': ['AB+'],  # Universal recipient
}


def is_compatible(donor_blood_group, recipient_blood_group):
    """
    Check if donor blood group is compatible with recipient

    Args:
        donor_blood_group: Donor's blood group (e.g., 'O+'), may be None
        recipient_blood_group: Recipient's blood group (e.g., 'A+')

    Returns:
        Boolean: True if compatible, False otherwise
    """
    return recipient_blood_group in get_compatible_recipients(donor_blood_group)


def get_compatible_recipients(donor_blood_group):
    """
    Get list of blood groups that can receive from donor
    """
    return COMPATIBILITY.get(donor_blood_group, [])
