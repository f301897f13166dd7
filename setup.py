"""
INSTALLING WITH TEST DEPENDENCIES: pip install -e .[test]
"""

from setuptools import setup

setup(
    name='traitdiv',
    version='0.1.0',
    packages=['traitdiv', 'traitdiv.algos', 'traitdiv.metrics', 'traitdiv.tools'],
    description='Functional trait diversity and taxonomic diversity measures for ecological communities',
    author='traitdiv contributors',
    license='GNU AGPLv3',
    python_requires='>=3.9',
    install_requires=[
        'numba',
        'numba-progress',
        'numpy',
        'pandas',
        'scikit-learn',
        'scipy',
        'tqdm'
    ],
    extras_require={
        'test': [
            'pytest'
        ]
    }
)
