"""
Translation utility for loading localized strings in Python modules.

This module provides functionality to load translation data from JSON files
shipped with the package and make it available to the result formatting code
that needs localized labels (output field names, risk levels, source notes).
"""

import json
import logging
import os

logger = logging.getLogger(__name__)

# Global translation objects
translations = {}
current_language = 'en'
available_languages = ['en', 'el']

TRANSLATIONS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'translations')


def load_translations(language='en'):
    """
    Load translation data from JSON file.

    Args:
        language (str): Language code (default: 'en')

    Returns:
        dict: Translation data or empty dict if loading fails
    """
    global current_language

    if language not in available_languages:
        logger.warning(f"Language {language} not supported. Using English fallback.")
        language = 'en'

    current_language = language
    translation_file = os.path.join(TRANSLATIONS_DIR, f'{language}.json')

    try:
        with open(translation_file, 'r', encoding='utf-8') as f:
            translations[language] = json.load(f)
        return translations[language]
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.warning(f"Could not load translations for {language}: {e}")
        translations[language] = {}
        return {}


def set_language(language):
    """
    Set the current language for translations.

    Args:
        language (str): Language code to set as current

    Returns:
        bool: True if language was set successfully, False otherwise
    """
    global current_language

    if language not in available_languages:
        logger.warning(f"Language {language} not supported.")
        return False

    if language not in translations:
        load_translations(language)

    current_language = language
    return True


def _resolve_translation(data, keys):
    current = data
    for key in keys:
        if not isinstance(current, dict) or key not in current:
            raise KeyError(key)
        current = current[key]
    if not isinstance(current, str):
        raise KeyError('.'.join(keys))
    return current


def get_translation(key_path, fallback='', language=None):
    """
    Get a translation string using dot notation for nested keys.

    Args:
        key_path (str): Dot-separated path to translation key (e.g., 'outputs.TNT_ton')
        fallback (str): Fallback text if translation not found
        language (str): Override language for this specific translation

    Returns:
        str: Translated text or fallback
    """
    target_language = language or current_language
    if target_language not in available_languages:
        target_language = 'en'

    if target_language not in translations:
        # Loading must not change the session language.
        previous = current_language
        load_translations(target_language)
        set_language(previous)

    keys = key_path.split('.')

    try:
        return _resolve_translation(translations[target_language], keys)
    except KeyError:
        if target_language != 'en':
            try:
                return _resolve_translation(translations.get('en', {}), keys)
            except KeyError:
                pass
        return fallback


def get_available_languages():
    """Return a copy of the supported language codes."""
    return available_languages.copy()


def get_current_language():
    """Return the current language code."""
    return current_language


# Load English translations on module import
load_translations('en')
