"""
Spark Fusion Build Configuration

Usage:
    pip install -e .                      # Core engine (hashing embedder, rule-based tagger)
    pip install -e ".[embeddings,nlp]"    # sentence-transformers and spaCy adapters
    pip install -e ".[test]"              # pytest + pytest-asyncio
"""

from setuptools import setup, find_packages

setup(
    name="spark-fusion",
    version="0.1.0",
    description="Synthetic memory fusion engine: associative memory and epiphany synthesis",
    packages=find_packages(include=["spark_fusion", "spark_fusion.*"]),
    install_requires=[
        "numpy>=1.24",
        "pydantic>=2.5",
        "pydantic-settings>=2.0",
        "loguru>=0.7",
        "aiosqlite>=0.19",
    ],
    extras_require={
        "embeddings": ["sentence-transformers>=2.2"],
        "nlp": ["spacy>=3.5"],
        "test": ["pytest>=7.4", "pytest-asyncio>=0.21"],
    },
    python_requires=">=3.11",
)
