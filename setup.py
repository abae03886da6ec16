from setuptools import setup

setup(
    name='optimus-ids',
    version='1.0',
    description="Reversible 64-bit id obfuscation using Knuth's multiplicative hashing.",
    python_requires='>=3.10',
    py_modules=[
        'app',
        'config',
        'core_logic',
        'corpus',
        'encoding',
        'errors',
        'models',
        'obfuscation',
        'primes',
        'seed',
    ],
    install_requires=[
        'fastapi',
        'pydantic>=2',
        'httpx',
        'slowapi',
        'uvicorn',
    ],
    extras_require={
        'test': ['pytest', 'respx'],
    },
)
