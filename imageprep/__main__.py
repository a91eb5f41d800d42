# SPDX-License-Identifier: LGPL-3.0-or-later
# imageprep/__main__.py
from .cli.sanitize_cmd import main

if __name__ == "__main__":
    main()
