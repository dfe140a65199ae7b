from setuptools import setup, find_packages


def get_version():
    f = open('./VERSION', 'r', encoding='utf-8')
    version = f.readline().strip()
    f.close()
    return version


def get_long_descript():
    f = open('./README.rst', 'r', encoding='utf-8')
    long_descript = f.read()
    f.close()
    return long_descript


if __name__ == '__main__':
    setup(name='hot-socket',
          version=get_version(),
          author='littlebutt',
          author_email='luogan1996@icloud.com',
          description="A small blocking WebSocket client",
          long_description=get_long_descript(),
          long_description_content_type='text/x-rst',
          url='https://github.com/littlebutt/hot-socket',
          python_requires='>=3.10',
          packages=find_packages(include=['hotsocket', 'hotsocket.*']),
          extras_require={
              'test': ['pytest', 'websockets>=13'],
          },
          entry_points={
              'console_scripts': ['hot-socket = hotsocket.cmds:main'],
          })
