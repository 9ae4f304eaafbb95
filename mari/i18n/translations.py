# -*- coding: utf-8 -*-
"""
Translation dictionaries for German and English.

This module contains all translatable strings for the Mari application.
"""

TRANSLATIONS = {
    "en": {
        # Application
        "app.name": "Mari",
        "app.ready": "Mari",
        "app.current_task": "Mari: {name}",

        # Tray menu
        "tray.show_log": "Activity Log",
        "tray.ask_now": "Ask Now",
        "tray.quit": "Quit",

        # Prompt
        "prompt.title": "What are you working on?",
        "prompt.no_tasks": "No tasks yet. Create one below.",
        "prompt.create_hint": "Press Enter to create \"{name}\"",
        "prompt.new_task_placeholder": "+ New task...",
        "prompt.hints": "↑↓ navigate   ⏎ select   Ctrl+⏎ confirm   esc deny",

        # Activity log
        "log.title": "Activity Log",
        "log.today": "Today",
        "log.yesterday": "Yesterday",
        "log.previous_day": "Previous day",
        "log.next_day": "Next day",
        "log.empty": "No entries for this day",
        "log.add_entry": "Add entry",
        "log.task_placeholder": "Task name...",
        "log.duration_placeholder": "0m",
        "log.delete_entry": "Delete Entry",
        "log.delete_task": "Delete Task \"{name}\"",
        "log.confirm_delete_task": "Delete \"{name}\" and all of its time entries?",
        "log.unknown_task": "Unknown Task",
        "log.task": "Task",
        "log.duration": "Duration",
        "log.load_failed": "Failed to load entries",
        "log.invalid_duration": "Could not read \"{text}\" as a duration.",

        # Errors
        "error.title": "Error",
        "error.init": "Failed to initialize application:\n{error}",
        "error.save": "Failed to save:\n{error}",
    },
    "de": {
        # Application
        "app.name": "Mari",
        "app.ready": "Mari",
        "app.current_task": "Mari: {name}",

        # Tray menu
        "tray.show_log": "Aktivitätsprotokoll",
        "tray.ask_now": "Jetzt fragen",
        "tray.quit": "Beenden",

        # Prompt
        "prompt.title": "Woran arbeitest du gerade?",
        "prompt.no_tasks": "Noch keine Aufgaben. Lege unten eine an.",
        "prompt.create_hint": "Enter drücken, um \"{name}\" anzulegen",
        "prompt.new_task_placeholder": "+ Neue Aufgabe...",
        "prompt.hints": "↑↓ wählen   ⏎ wechseln   Strg+⏎ bestätigen   Esc ablehnen",

        # Activity log
        "log.title": "Aktivitätsprotokoll",
        "log.today": "Heute",
        "log.yesterday": "Gestern",
        "log.previous_day": "Vorheriger Tag",
        "log.next_day": "Nächster Tag",
        "log.empty": "Keine Einträge für diesen Tag",
        "log.add_entry": "Eintrag hinzufügen",
        "log.task_placeholder": "Aufgabe...",
        "log.duration_placeholder": "0m",
        "log.delete_entry": "Eintrag löschen",
        "log.delete_task": "Aufgabe \"{name}\" löschen",
        "log.confirm_delete_task": "\"{name}\" und alle Zeiteinträge löschen?",
        "log.unknown_task": "Unbekannte Aufgabe",
        "log.task": "Aufgabe",
        "log.duration": "Dauer",
        "log.load_failed": "Einträge konnten nicht geladen werden",
        "log.invalid_duration": "\"{text}\" ist keine gültige Dauer.",

        # Errors
        "error.title": "Fehler",
        "error.init": "Anwendung konnte nicht gestartet werden:\n{error}",
        "error.save": "Speichern fehlgeschlagen:\n{error}",
    },
}
