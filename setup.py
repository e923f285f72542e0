from setuptools import setup, find_packages
import re

# Read version from fiscalnd/__init__.py
with open('fiscalnd/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='fiscal-nd',
    version=version,
    packages=find_packages(include=['fiscalnd', 'fiscalnd.*']),
    package_data={
        'fiscalnd': ['rulesets/*.yaml', 'rulesets/*.json'],
    },
    install_requires=[
        'PyYAML>=6.0',
        'click>=8.0',
        'pydantic>=2.0.0',
        'rich>=13.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'fiscal-nd=fiscalnd.cli.__main__:main',
        ],
    },
    author='Personal',
    description='Tax estimation and explanation engine for federal and North Dakota returns.',
    python_requires='>=3.10',
)
