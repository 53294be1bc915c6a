"""
Services package for the EMWUI client

This package contains the protocol adapter and the filtering logic.
"""
from epgtimer.services.emwui_client import EMWUIClient
from epgtimer.services.epg_fetch_service import fetch_program_guides
from epgtimer.services.filters import apply_filter
from epgtimer.services.form_codec import encode_rule_form, extract_token

__all__ = [
    'EMWUIClient',
    'fetch_program_guides',
    'apply_filter',
    'encode_rule_form',
    'extract_token',
]
