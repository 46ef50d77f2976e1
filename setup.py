from setuptools import setup

setup(
    name='aclshell',
    version='0.1.0',
    description='getfacl/setfacl style tools for POSIX access control lists',
    python_requires='>=3.10',
    packages=['aclshell', '_aclshell_scripts'],
    package_dir={
        '_aclshell_scripts': 'scripts',
    },
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'aclshell_getfacl=_aclshell_scripts._getfacl:main',
            'aclshell_setfacl=_aclshell_scripts._setfacl:main',
        ],
    },
)
