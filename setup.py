import os
from setuptools import setup, find_packages

here = os.path.abspath(os.path.dirname(__file__))

# Read requirements from requirements.txt
with open(os.path.join(here, 'requirements.txt')) as f:
    requirements = [line.strip() for line in f if line.strip() and not line.startswith('#')]

# Read long description from README.md if you have one
try:
    with open(os.path.join(here, 'README.md'), 'r', encoding='utf-8') as f:
        long_description = f.read()
except FileNotFoundError:
    long_description = ''

setup(
    name='crack-analysis',
    version='0.1.0',
    author='Sobhan RJZ',
    author_email='sobhan.rajabzadeh@gmail.com',
    description='Crack width, length and area measurement from segmentation model output',
    long_description=long_description,
    long_description_content_type='text/markdown',
    packages=find_packages(include=['CrackAnalysis', 'Reporter', 'utils']),
    py_modules=['AnalyseCracks_Main', 'service'],
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Topic :: Scientific/Engineering :: Image Recognition',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3.10'
    ],
    python_requires='>=3.10',
    install_requires=requirements,
    extras_require={
        'dev': [
            'pytest>=7.4.0',
            'pytest-cov>=4.1.0',
            'httpx>=0.24.0',
            'black>=22.3.0',
            'isort>=5.10.1',
            'flake8>=4.0.1',
        ],
    },
    entry_points={
        'console_scripts': [
            'crack-analyser=AnalyseCracks_Main:main',
        ],
    },
)
