import os
from setuptools import setup, find_packages

readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
with open(readme_path) as readme:
    long_description = readme.read()

setup(name='punchclock-cli',
      description='Find biometric attendance terminals on your network and pull their punch records',
      long_description=long_description,
      long_description_content_type='text/markdown',
      version='0.1.0',
      packages=find_packages(exclude=['tests']),
      install_requires=[
          'prettytable',
          'pyzk',
      ],
      extras_require={
          'test': ['pytest'],
      },
      entry_points={
          'console_scripts': [
              'punchclock-cli = punchclock_cli.cli:main',
          ]
      },
      classifiers=[
        'Programming Language :: Python :: 3'
      ])
