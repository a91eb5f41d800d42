# SPDX-License-Identifier: LGPL-3.0-or-later
from setuptools import setup, find_packages

setup(
    name="imageprep",
    version="0.1.0",
    packages=find_packages(include=["imageprep", "imageprep.*"]),
    install_requires=[l.strip() for l in open("requirements.txt", encoding="utf-8") if l.strip() and not l.startswith("#")],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": [
            "image-sanitize=imageprep.cli.sanitize_cmd:main",
            "registry-backup=imageprep.cli.backup_cmd:main",
        ]
    },
)
