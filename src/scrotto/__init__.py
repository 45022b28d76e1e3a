"""Scrotto - screen text grabber for Linux desktops.

Select an area (or the whole screen), run OCR over it and put the
recognised text on the clipboard:
- Wayland (GNOME portal, gnome-screenshot, grim/slurp) and X11 capture
- Clipboard with readback verification
- Desktop notification with a preview of the text
"""

__version__ = "0.3.0"
