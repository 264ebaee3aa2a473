from setuptools import setup

setup(
    name='smtgen',
    version='0.1.0',
    packages=['smtgen'],
    package_dir={'': 'src'},
    package_data={'smtgen': ['resources/.smtgenrc']},
    python_requires='>=3.10',
    install_requires=[
        'z3-solver>=4.8.17',
        'returns>=0.19',
        'frozendict>=2.3',
        'toml>=0.10',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    entry_points={
        'console_scripts': ['smtgen=smtgen.cli:main'],
    },
    license='GNU GPLv3',
    description='Solver abstraction and test synthesis for a static program verifier'
)
