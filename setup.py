"""peekread PiP Installer"""

from setuptools import setup, find_packages

import os.path
here = os.path.abspath(os.path.dirname(__file__))
major, minor, micro = 0, 0, 0
exec(open(os.path.join(here, 'peekread/version.py')).read())


setup(
    name='peekread',
    version='%s.%s.%s' % (major, minor, micro),
    description='Peek ahead in binary streams without consuming them',
    long_description="Wrappers that let you look ahead into any binary stream, seekable or forward-only, "
                     "to sniff a signature or try a speculative parse while later readers still see "
                     "the stream from its original position.",
    license='MIT',
    classifiers=[
        'Development Status :: 5 - Production/Stable',
        'Intended Audience :: Developers',
        'Topic :: Software Development :: Libraries',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
    keywords='peek stream lookahead io buffer sniff magic signature',
    packages=find_packages(exclude=['docs', 'pipelines', 'unittests']),
    install_requires=[],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'peekread=peekread:main',
        ],
    },
    python_requires=">=3.8",
)
