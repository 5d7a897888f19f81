"""
fedstore Setup Script

Install with: pip install -e .
"""

from setuptools import setup, find_packages

setup(
    name='fedstore',
    version='0.1.0',
    description='Federated record store over several Firestore databases',
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={
        'fedstore.config': ['*.yaml'],
    },
    install_requires=[
        'google-cloud-firestore>=2.16.0',
        'google-api-core>=2.15.0',
        'google-auth>=2.25.0',
        'structlog>=24.1.0',
        'pydantic>=2.5.0',
        'pyyaml>=6.0.1',
        'pandas>=2.1.0',
        'click>=8.1.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.4.0',
            'pytest-asyncio>=0.23.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'fedstore=fedstore.cli.commands:cli',
        ],
    },
    python_requires='>=3.11',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Database',
    ],
)
