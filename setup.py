#!/usr/bin/env python

import setuptools

setuptools.setup(
    name="mdpreview",
    version="0.3.0",
    description="Live Markdown preview with editor scroll synchronization and safe link routing.",
    packages=setuptools.find_packages(exclude=["tests", "tests.*"]),
    package_data={"mdpreview.configs": ["*.yaml", "*.html"]},
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    install_requires=['PyYAML>=5.3',
                      'termcolor>=1.1.0',
                      'colorama>=0.4.4; os_name=="nt"',
                      'qtpy>=2.0.0',
                      'PyQt5>=5.15.0',
                      'PyQtWebEngine>=5.15.0',
                      'markdown-it-py>=3.0.0',
                      'mdit-py-plugins>=0.4.0',
                      ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    python_requires='>=3.10',

    entry_points={
        'console_scripts': [
            'mdpreview = mdpreview.gui.app:main',
        ],
    },


)
