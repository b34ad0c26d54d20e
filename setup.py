from setuptools import setup, find_packages

setup(
    name="stylus-bundler",
    version="1.0.0",
    packages=find_packages(),
    package_data={'stylus_bundler': ['data/*.json']},
    install_requires=[
        'csscompressor',
        'cssutils',
        'aiofiles',
        'orjson',
        'typing-extensions'
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-cov',
            'pytest-timeout',
        ],
    },
    python_requires='>=3.7',
    author="Kenneth Hanks",
    author_email="fourfigs@gmail.com",
    description="Compiles Stylus block fragments into one prefixed, source-mapped CSS bundle",
    long_description=open('README.md').read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
