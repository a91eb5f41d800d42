# SPDX-License-Identifier: LGPL-3.0-or-later
# imageprep/cli/__init__.py
