from setuptools import setup, find_packages

setup(
    name="s3deploy",
    version="0.1.0",
    packages=find_packages(exclude=["*.tests", "*.tests.*"]),
    py_modules=["cli"],
    install_requires=[
        "boto3",
        "botocore",
    ],
    extras_require={
        "tests": [
            "pytest",
            "moto[s3]>=5",
        ],
    },
    entry_points={
        'console_scripts': [
            's3deploy=cli:main',
        ],
    },
    author="ecaa",
    description="Pull the current app release from S3, extract it and activate it",
    python_requires='>=3.8',
)
